# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Domain errors raised by the record modules.

Routers translate these to ``HTTPException`` using ``status_code``.
"""


class ConsoleError(Exception):
    """Base class for record-level failures."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ConsoleError):
    status_code = 400


class NotFoundError(ConsoleError):
    status_code = 404


class ConflictError(ConsoleError):
    status_code = 409
