"""PAL: local API-key keystore and project env bootstrap."""
