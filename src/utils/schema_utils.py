import os, toml
from models.models import SheetSchema


def load_sheet_schema(path: str | None = None) -> SheetSchema:
    schema_file = path or os.path.join(
        os.path.dirname(__file__), "../config/sheets.toml"
    )
    with open(schema_file, "r") as f:
        data = toml.load(f)
    return SheetSchema.model_validate(data)
