"""synceta: flush the page cache with a live progress estimate."""
