"""Resource route declarations. One module per API resource."""
