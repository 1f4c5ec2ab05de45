"""HTTP surface for the EVE SSO login flow."""
