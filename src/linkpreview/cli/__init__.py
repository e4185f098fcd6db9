"""LinkPreview command-line interface."""
