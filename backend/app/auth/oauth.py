from authlib.integrations.starlette_client import OAuth

from ..core.config import settings
from .identity import LINKEDIN_AUTHORIZE_URL, LINKEDIN_TOKEN_URL, LINKEDIN_USERINFO_URL

# Initialize OAuth client
oauth = OAuth()

# Register LinkedIn client (used for the authorize redirect; the code exchange
# is done by LinkedInIdentityProvider)
oauth.register(
    name='linkedin',
    client_id=settings.LINKEDIN_CLIENT_ID,
    client_secret=settings.LINKEDIN_CLIENT_SECRET,
    authorize_url=LINKEDIN_AUTHORIZE_URL,
    authorize_params=None,
    access_token_url=LINKEDIN_TOKEN_URL,
    access_token_params=None,
    client_kwargs={'scope': 'openid profile email'},  # Standard OIDC scopes
    userinfo_endpoint=LINKEDIN_USERINFO_URL,
)
