from __future__ import annotations

import secrets

from pydantic import BaseModel, ConfigDict, Field

from taskdeque.core.config.settings import settings


def new_sequencer_name() -> str:
    # High-entropy suffix so concurrent sequencers are told apart in logs
    return f"seq_{secrets.token_hex(4)}"


class SequencerConfig(BaseModel):
    """
    Validated per-instance options of a Sequencer.

    Assignment is validated too, so timeout_duration can be changed at any
    time without ever holding an unusable value.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    name: str = Field(
        default_factory=new_sequencer_name,
        min_length=1,
        pattern=r"^[A-Za-z0-9_.\-]+$",
        description="Identifier used in logs and journals",
    )
    timeout_duration: float = Field(
        default_factory=lambda: settings.default_timeout_seconds,
        gt=0,
        allow_inf_nan=False,
        description="Seconds allowed between consecutive next() calls",
    )
