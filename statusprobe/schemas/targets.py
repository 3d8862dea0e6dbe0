from typing import List, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator

from statusprobe.middleware.security import Security


# (url, tag): the identity of one series in the exported gauge
TargetKey = Tuple[str, str]

# HTTP status code in [100, 599], or 0 when the probe failed
StatusSignal = int

FAILED_SIGNAL: StatusSignal = 0


class Target(BaseModel):
    """One thing to probe. `tag` is only a metric label, never used for routing."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(..., min_length=1)
    # `ip` is the key used by older target files
    tag: str = Field('', validation_alias=AliasChoices('tag', 'ip'))

    @field_validator('url')
    @classmethod
    def _check_url(cls, value: str) -> str:
        if not Security().is_valid_target_url(value):
            raise ValueError(f"not a valid http(s) url: {value!r}")
        return value

    @property
    def key(self) -> TargetKey:
        return (self.url, self.tag)


class ProbeSettings(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    interval_seconds: int = Field(..., gt=0, validation_alias=AliasChoices('interval_seconds', 'update_freq'))
    timeout_seconds: int = Field(..., gt=0, validation_alias=AliasChoices('timeout_seconds', 'timeout'))


class TargetRegistry(BaseModel):
    """Targets and timing policy, loaded once at startup."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    targets: Tuple[Target, ...] = Field(..., validation_alias=AliasChoices('urls', 'targets'))
    settings: ProbeSettings

    def keys(self) -> List[TargetKey]:
        return [t.key for t in self.targets]


class Credentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str = Field(..., min_length=1)
    password: SecretStr

    @field_validator('password')
    @classmethod
    def _check_password(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("password must not be empty")
        return value
