"""SecureHome Audit service."""
