import tomllib

from fastapi import APIRouter

from settings import PROJECT_PATH

router = APIRouter()


def get_version() -> str:
    """Read version from pyproject.toml"""
    with open(PROJECT_PATH / "pyproject.toml", "rb") as f:
        pyproject = tomllib.load(f)
    return pyproject["project"]["version"]


@router.get("/")
async def index():
    return {"version": get_version(), "status": "ok"}
