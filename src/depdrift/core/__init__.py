"""Core data model: manifests, workspaces and the installed-package index."""
