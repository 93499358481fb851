"""HTTP API for the Spatial CAPTCHA service."""
