"""Rules catching templates that misbehave at runtime."""
