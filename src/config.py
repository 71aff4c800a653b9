"""Configuration settings for the blood donor registry."""

import os


def get_sqlite_uri():
    """Get SQLite connection URI for the local device storage file."""
    path = os.environ.get("BLOODCONNECT_DB_PATH", "bloodconnect.db")
    return f"sqlite:///{path}"


def get_storage_keys():
    """Get the fixed storage keys of the donor and request collections."""
    donors = os.environ.get("BLOODCONNECT_DONORS_KEY", "bd_donors_v1")
    requests = os.environ.get("BLOODCONNECT_REQUESTS_KEY", "bd_requests_v1")
    return dict(donors=donors, requests=requests)


def get_notification_ttl():
    """Get how long (seconds) a notification stays visible."""
    return float(os.environ.get("BLOODCONNECT_NOTIFICATION_TTL", "3.5"))


def get_export_filename():
    """Get the file name offered for the export download."""
    return os.environ.get("BLOODCONNECT_EXPORT_FILENAME", "blood-donation-data.json")


def get_api_host_and_port():
    """Get API bind address from environment variables."""
    host = os.environ.get("API_HOST", "127.0.0.1")
    port = int(os.environ.get("API_PORT", "8000"))
    return dict(host=host, port=port)
