"""
Core utilities shared across the FotoFocus API.

Configuration, error taxonomy, password/code hashing, the mailer adapter,
blob storage and request rate limiting live here so that services and routers
do not read os.environ or touch SMTP/disk directly.
"""
