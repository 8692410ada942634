"""Construction progress client portal."""
