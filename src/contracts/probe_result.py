from pydantic import BaseModel, ConfigDict


class ProbeResult(BaseModel):
    """
    Status code and short diagnostic body returned for a single probe request.
    """

    model_config = ConfigDict(frozen=True)

    status_code: int
    body: str


NOT_FOUND = ProbeResult(status_code=404, body="Not found")
SHUTTING_DOWN = ProbeResult(status_code=200, body="Server is shutting down")
SERVICE_UNAVAILABLE = ProbeResult(status_code=503, body="Service Unavailable")
ALIVE = ProbeResult(status_code=200, body="Alive!")
ALIVE_KEY_MISSING = ProbeResult(status_code=404, body="Can't find the alive key")
INTERNAL_ERROR = ProbeResult(status_code=500, body="Internal Server Error")
