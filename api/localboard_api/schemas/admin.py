from pydantic import BaseModel


class AdminMaintenanceOut(BaseModel):
    count: int
