"""Registry of supported API providers."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Provider:
    id: str
    name: str
    default_env_var: str
    sdk_package: str | None
    scopes: list[str] = field(default_factory=list)


PROVIDERS: dict[str, Provider] = {
    p.id: p
    for p in [
        Provider("openai", "OpenAI", "OPENAI_API_KEY", "openai",
                 ["chat", "embeddings", "images", "audio", "assistants"]),
        Provider("anthropic", "Anthropic", "ANTHROPIC_API_KEY", "@anthropic-ai/sdk",
                 ["messages", "completions"]),
        Provider("stripe", "Stripe", "STRIPE_SECRET_KEY", "stripe",
                 ["payments", "subscriptions", "customers", "invoices"]),
        Provider("twilio", "Twilio", "TWILIO_AUTH_TOKEN", "twilio", ["sms", "voice", "verify"]),
        Provider("sendgrid", "SendGrid", "SENDGRID_API_KEY", "@sendgrid/mail", ["email"]),
        Provider("resend", "Resend", "RESEND_API_KEY", "resend", ["email"]),
        Provider("supabase", "Supabase", "SUPABASE_SERVICE_KEY", "@supabase/supabase-js",
                 ["database", "auth", "storage"]),
        Provider("firebase", "Firebase", "FIREBASE_SERVICE_ACCOUNT", "firebase-admin",
                 ["firestore", "auth", "storage", "messaging"]),
        Provider("aws", "AWS", "AWS_SECRET_ACCESS_KEY", "@aws-sdk/client-s3",
                 ["s3", "ses", "lambda", "dynamodb"]),
        Provider("custom", "Custom API", "API_KEY", None),
    ]
}


class UnknownProviderError(ValueError):
    """No provider is registered under the given id."""


def get_provider(provider_id: str) -> Provider | None:
    """Look up a provider by id, case-insensitively."""
    return PROVIDERS.get(provider_id.lower())


def list_providers() -> list[Provider]:
    return list(PROVIDERS.values())
