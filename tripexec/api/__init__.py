"""HTTP host for execution sessions."""
