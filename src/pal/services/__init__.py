"""Project-level operations built on the keystore."""
