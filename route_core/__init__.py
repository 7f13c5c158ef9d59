"""Track graph model and bend reshaping for GPS route editing."""
