from passlib.context import CryptContext

from ...application.ports.code_hasher import CodeHasher


class PasslibCodeHasher(CodeHasher):
    """Argon2 hashes for verification codes; every hash gets its own salt."""

    def __init__(self, time_cost: int = 3, memory_cost: int = 65536, parallelism: int = 2) -> None:
        self._context = CryptContext(
            schemes=["argon2"],
            deprecated="auto",
            argon2__time_cost=time_cost,
            argon2__memory_cost=memory_cost,
            argon2__parallelism=parallelism,
        )

    def hash(self, code: str) -> str:
        return self._context.hash(code)

    def verify(self, code: str, code_hash: str) -> bool:
        # Unparseable stored hashes are a server fault, not a wrong code
        return self._context.verify(code, code_hash)
