"""HTTP layer: the blog router and the authentication dependencies it uses."""
