from pydantic import BaseModel


class HealthStatus(BaseModel):
    status: str
    version: str


class OptionError(BaseModel):
    code: str
    option: str
    message: str
