"""MediaShelf backend: media discovery plus a per-user to-watch list."""
