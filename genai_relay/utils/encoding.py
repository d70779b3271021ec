from __future__ import annotations
from pathlib import Path
from typing import Union
import base64


def to_base64(data: Union[str, Path, bytes]) -> str:
    if isinstance(data, (str, Path)):
        path = Path(data)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {data}")
        return base64.b64encode(path.read_bytes()).decode('utf-8')

    elif isinstance(data, (bytes, bytearray)):
        return base64.b64encode(data).decode('utf-8')

    else:
        raise ValueError(f"Unsupported data type: {type(data)}")
