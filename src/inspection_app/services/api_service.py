"""API service for HTTP client abstraction."""
import requests
import time
import logging


class APIService:
    """HTTP client for the remote document database with retry logic.

    Paths are database paths (``forms``, ``completedForms/...``); the service
    maps them to the REST form ``<base>/<path>.json``.
    """

    def __init__(self, base_url='http://localhost:9000', timeout=10.0, max_retries=3,
                 retry_delay=1.0, auth_token=None, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.auth_token = auth_token
        self.session = session or requests.Session()
        self.logger = logging.getLogger(self.__class__.__name__)

    def url_for(self, path):
        """Build the REST URL for a database path."""
        path = path.strip('/')
        return f"{self.base_url}/{path}.json"

    def _merge_params(self, kwargs):
        """Add the auth token to query parameters when configured."""
        if not self.auth_token:
            return kwargs
        params = dict(kwargs.get('params') or {})
        params['auth'] = self.auth_token
        kwargs['params'] = params
        return kwargs

    def _make_request(self, method, url, **kwargs):
        """Make HTTP request with retry logic.

        Client errors other than 408/429 are returned without retry. Server
        errors and connection failures are retried with exponential backoff.
        """
        kwargs = self._merge_params(kwargs)
        kwargs.setdefault('timeout', self.timeout)

        last_exception = None
        response = None

        for attempt in range(self.max_retries):
            try:
                response = self.session.request(method, url, **kwargs)
                last_exception = None
                if 400 <= response.status_code < 500:
                    if response.status_code not in (408, 429):
                        return response
                elif response.status_code < 500:
                    return response

                if attempt < self.max_retries - 1:
                    self.logger.warning(f"Request failed (attempt {attempt + 1}/{self.max_retries}): {response.status_code} {response.reason}")
                    time.sleep(self.retry_delay * (2 ** attempt))

            except requests.exceptions.RequestException as e:
                response = None
                last_exception = e
                if attempt < self.max_retries - 1:
                    self.logger.warning(f"Request exception (attempt {attempt + 1}/{self.max_retries}): {e}")
                    time.sleep(self.retry_delay * (2 ** attempt))
                else:
                    self.logger.error(f"Request failed after {self.max_retries} attempts: {e}")

        # Retries exhausted on a retryable status: hand back the last response
        if response is not None:
            return response
        if last_exception:
            raise last_exception
        raise requests.exceptions.RequestException("All retry attempts failed")

    def get(self, path, **kwargs):
        """GET a database path."""
        return self._make_request('GET', self.url_for(path), **kwargs)

    def put(self, path, **kwargs):
        """PUT (replace) the value at a database path."""
        return self._make_request('PUT', self.url_for(path), **kwargs)

    def patch(self, path, **kwargs):
        """PATCH (merge) into the value at a database path."""
        return self._make_request('PATCH', self.url_for(path), **kwargs)
