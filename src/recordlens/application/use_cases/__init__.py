from .base import UseCase, UseCaseRequest, UseCaseResponse
from .rename_record import RenameRecordRequest, RenameRecordResponse, RenameRecordUseCase

__all__ = [
    "RenameRecordRequest",
    "RenameRecordResponse",
    "RenameRecordUseCase",
    "UseCase",
    "UseCaseRequest",
    "UseCaseResponse",
]
