"""
Rate limiting configuration.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Create limiter instance
limiter = Limiter(key_func=get_remote_address)

# Rate limit configurations
# Format: "count/period" where period can be second(s), minute(s), hour(s), day(s)

AUTH_LIMIT = "10/minute"  # Login/register endpoints
AI_ACTION_LIMIT = "30/minute"
UPLOAD_LIMIT = "20/hour"
