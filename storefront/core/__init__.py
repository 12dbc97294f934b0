"""
Core utilities shared across the storefront API.

Configuration, error taxonomy, password hashing, id generation, logging setup
and the request rate limiter live here so that drivers, services and routers
do not read os.environ or reimplement these concerns.
"""
