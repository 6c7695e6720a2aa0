import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./hellokeys.db")

# Supabase (identity service + admin API)
SUPABASE_URL = os.getenv("SUPABASE_URL", "").rstrip("/")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
SUPABASE_JWT_AUDIENCE = os.getenv("SUPABASE_JWT_AUDIENCE", "authenticated")
if not SUPABASE_JWT_SECRET:
    import warnings

    warnings.warn(
        "SUPABASE_JWT_SECRET not set! Every authenticated request will be rejected",
        RuntimeWarning,
        stacklevel=2,
    )

# Shared secret for scheduled jobs calling the Netatmo proxy
CRON_SECRET = (os.getenv("CRON_SECRET") or "").strip()

# Frontend base URL used in emails and Stripe redirects
APP_BASE_URL = os.getenv("APP_BASE_URL", "https://beta.proprietaire.hellokeys.fr")

# Object storage (S3-compatible, Supabase Storage or R2)
STORAGE_ENDPOINT_URL = os.getenv("STORAGE_ENDPOINT_URL")
STORAGE_ACCESS_KEY_ID = os.getenv("STORAGE_ACCESS_KEY_ID")
STORAGE_SECRET_ACCESS_KEY = os.getenv("STORAGE_SECRET_ACCESS_KEY")
STORAGE_REGION = os.getenv("STORAGE_REGION", "auto")
DOCUMENTS_BUCKET = os.getenv("DOCUMENTS_BUCKET", "secure_documents")
STATEMENTS_BUCKET = os.getenv("STATEMENTS_BUCKET", "statements")

# Stripe Connect
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_DEFAULT_ONBOARDING_URL = os.getenv(
    "STRIPE_DEFAULT_ONBOARDING_URL", "https://hellokeys.fr/admin/users"
)

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv(
    "EMAIL_FROM_ADDRESS", "Hello Keys <noreply@notifications.hellokeys.fr>"
)

# Twilio Verify (phone number verification)
TWILIO_ACCOUNT_SID = (os.getenv("TWILIO_ACCOUNT_SID") or "").strip()
TWILIO_AUTH_TOKEN = (os.getenv("TWILIO_AUTH_TOKEN") or "").strip()
TWILIO_VERIFY_SERVICE_SID = (os.getenv("TWILIO_VERIFY_SERVICE_SID") or "").strip()

# Netatmo OAuth
NETATMO_CLIENT_ID = os.getenv("NETATMO_CLIENT_ID")
NETATMO_CLIENT_SECRET = os.getenv("NETATMO_CLIENT_SECRET")

# RTE Ecowatt OAuth (client credentials)
RTE_CLIENT_ID = (os.getenv("RTE_CLIENT_ID") or "").strip()
RTE_CLIENT_SECRET = (os.getenv("RTE_CLIENT_SECRET") or "").strip()

# Revyoos reviews
REVYOOS_EMAIL = os.getenv("REVYOOS_EMAIL")
REVYOOS_PASSWORD = os.getenv("REVYOOS_PASSWORD")

# Pennylane accounting
PENNYLANE_API_KEY = os.getenv("PENNYLANE_API_KEY")

# Freshdesk support desk
FRESHDESK_DOMAIN = os.getenv("FRESHDESK_DOMAIN")
FRESHDESK_API_KEY = os.getenv("FRESHDESK_API_KEY")

# OpenAI (annual report analysis)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
