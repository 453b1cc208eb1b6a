"""
GitHub Client
Thin wrapper over the GitHub REST and OAuth endpoints used by the site
"""
import logging

import requests

from studyhall.errors import BackendError

logger = logging.getLogger(__name__)

USER_AGENT = 'StudyHall-Server'


class GitHubClient:
    """GitHub API access with an injectable requests session"""

    def __init__(self, token=None, session=None, api_url='https://api.github.com',
                 oauth_url='https://github.com', timeout=10):
        self.token = token
        self.session = session or requests.Session()
        self.api_url = api_url.rstrip('/')
        self.oauth_url = oauth_url.rstrip('/')
        self.timeout = timeout

    @classmethod
    def from_config(cls, config, session=None):
        return cls(
            token=config.get('GITHUB_TOKEN'),
            session=session,
            api_url=config.get('GITHUB_API_URL', 'https://api.github.com'),
            oauth_url=config.get('GITHUB_OAUTH_URL', 'https://github.com'),
            timeout=config.get('HTTP_TIMEOUT', 10),
        )

    def _headers(self, token=None):
        headers = {
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': USER_AGENT,
        }
        token = token or self.token
        if token:
            headers['Authorization'] = f'Bearer {token}'
        return headers

    @staticmethod
    def _json(response, what):
        try:
            return response.json()
        except ValueError:
            raise BackendError(f'Failed to parse GitHub {what} response')

    def exchange_code(self, code, client_id, client_secret):
        """
        Exchange an OAuth authorization code for an access token.

        Raises:
            BackendError: transport failure or no access_token in the reply
        """
        try:
            response = self.session.post(
                f'{self.oauth_url}/login/oauth/access_token',
                json={'client_id': client_id, 'client_secret': client_secret, 'code': code},
                headers={'Accept': 'application/json', 'User-Agent': USER_AGENT},
                timeout=self.timeout,
            )
        except requests.RequestException as err:
            raise BackendError(f'GitHub OAuth request failed: {err}')

        data = self._json(response, 'OAuth')
        token = data.get('access_token')
        if not token:
            raise BackendError(f"GitHub OAuth error: {data.get('error_description') or 'Unknown error'}")
        return token

    def get_user(self, access_token):
        """Profile of the user owning the access token"""
        try:
            response = self.session.get(
                f'{self.api_url}/user',
                headers=self._headers(access_token),
                timeout=self.timeout,
            )
        except requests.RequestException as err:
            raise BackendError(f'GitHub user request failed: {err}')

        if response.status_code != 200:
            raise BackendError(f'GitHub API error: {response.status_code}')
        return self._json(response, 'user')

    def create_issue(self, repo, title, body, labels=None):
        """
        Open an issue in owner/repo.

        Returns:
            dict: the created issue (html_url, number, ...)
        """
        if '/' not in (repo or ''):
            raise BackendError(f'Invalid repository name: {repo!r}')
        try:
            response = self.session.post(
                f'{self.api_url}/repos/{repo}/issues',
                json={'title': title, 'body': body, 'labels': labels or []},
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as err:
            raise BackendError(f'GitHub issue request failed: {err}')

        if response.status_code != 201:
            raise BackendError(f'GitHub API error: {response.status_code} - {response.text}')
        return self._json(response, 'issue')
