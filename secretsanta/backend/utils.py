import os
import logging
from typing import Optional

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Ensure environment variables from .env are loaded when this module is imported.
load_dotenv()


def require_env(name: str) -> str:
    """Return the value of environment variable ``name``.

    Raises
    ------
    ValueError
        If the variable is unset or empty.
    """
    value = os.environ.get(name)
    if not value:
        raise ValueError(f"Environment variable '{name}' is not set")
    return value


def open_session(api_key: str, access_token: Optional[str] = None) -> requests.Session:
    """Open a requests session pre-configured for the backend REST API.

    Parameters
    ----------
    api_key : str
        Project API key sent in the ``apikey`` header.
    access_token : Optional[str], default: None
        User JWT issued by the identity provider. When omitted the API key is
        used as bearer token, which limits access to anonymous row policies.

    Returns
    -------
    requests.Session
        Session whose default headers authenticate every request.
    """
    if not api_key:
        raise ValueError("An API key is required to open a backend session")

    session = requests.Session()
    session.headers.update(
        {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
    )
    # Never log key or token values
    logger.debug(
        "Backend session opened (%s)",
        "user token" if access_token else "anonymous key",
    )
    return session
