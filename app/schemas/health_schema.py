from pydantic import BaseModel


class DatabaseStatus(BaseModel):
    connected: bool


class HealthCheck(BaseModel):
    status: str
    uptime: float
    database: DatabaseStatus
    environment: str


class ApiInfo(BaseModel):
    name: str
    version: str
    environment: str
