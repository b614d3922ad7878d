"""HTTP routers for the payment advice service."""
