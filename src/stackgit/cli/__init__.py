"""Support modules for the ``stackgit`` command line interface."""
