"""Rules enforcing consistent template style."""
