"""contextpilot command line interface."""
