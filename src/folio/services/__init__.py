"""Draft lifecycle services: excerpts, autosave, snapshots, publishing, workspace."""
