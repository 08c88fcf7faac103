"""hostsnap command-line interface."""
