from typing import Protocol


class CodeHasher(Protocol):
    def hash(self, code: str) -> str:
        ...

    def verify(self, code: str, code_hash: str) -> bool:
        ...
