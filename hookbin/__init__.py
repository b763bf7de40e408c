"""hookbin: register named webhook endpoints and capture every delivery to disk."""
