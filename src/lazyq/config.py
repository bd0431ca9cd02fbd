from __future__ import annotations

from dataclasses import dataclass
import os


@dataclass(frozen=True)
class Credentials:
    access_key_id: str
    secret_access_key: str
    session_token: str | None = None


@dataclass(frozen=True)
class ClientConfig:
    region: str = "us-east-1"
    # None means: let the AWS SDK find credentials the usual way
    credentials: Credentials | None = None
    queue_name_prefix: str = ""
    # Seconds between two receive cycles of a pull loop
    poll_interval: float = 5.0
    # SQS won't recreate a deleted queue name for 60 seconds
    recreate_delay: float = 60.0

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Build a config from environment variables, defaults for the rest."""
        region = (
            os.environ.get("LAZYQ_REGION")
            or os.environ.get("AWS_REGION")
            or os.environ.get("AWS_DEFAULT_REGION")
            or cls.region
        )
        credentials = None
        key_id = os.environ.get("AWS_ACCESS_KEY_ID")
        secret = os.environ.get("AWS_SECRET_ACCESS_KEY")
        if key_id and secret:
            credentials = Credentials(key_id, secret, os.environ.get("AWS_SESSION_TOKEN"))
        return cls(
            region=region,
            credentials=credentials,
            queue_name_prefix=os.environ.get("LAZYQ_QUEUE_PREFIX", ""),
            poll_interval=float(os.environ.get("LAZYQ_POLL_INTERVAL", cls.poll_interval)),
            recreate_delay=float(os.environ.get("LAZYQ_RECREATE_DELAY", cls.recreate_delay)),
        )

    def session_kwargs(self) -> dict:
        """Keyword arguments for an aioboto3.Session."""
        kwargs = {"region_name": self.region}
        if self.credentials is not None:
            kwargs["aws_access_key_id"] = self.credentials.access_key_id
            kwargs["aws_secret_access_key"] = self.credentials.secret_access_key
            if self.credentials.session_token:
                kwargs["aws_session_token"] = self.credentials.session_token
        return kwargs
