"""Folio — draft lifecycle and document organization for a personal publishing workspace."""
