"""Course catalogue: courses, lectures and gated lecture access."""
