"""
Parameter Normalization Module

Coerces and validates raw CRUD parameters into the canonical CrudRequest.
"""

from enum import Enum
from typing import Any, Mapping, Union

from pydantic import ValidationError as PydanticValidationError

from crudgate.common.errors import ValidationError
from crudgate.common.ids import coerce_filter_ids, to_object_ids
from crudgate.config import CrudOptions
from crudgate.domain.record import ID_FIELD
from crudgate.domain.request import CrudParams, CrudRequest


class Operation(str, Enum):
    """Pipeline operations, each with its own required parameters"""

    SAVE = "save"
    DELETE = "delete"
    GET = "get"
    GET_ALL = "get_all"
    LOAD = "load"


class ParamNormalizer:
    """
    Parameter Normalizer

    Produces a CrudRequest where:
    - ids are ObjectIds (invalid ids are rejected)
    - `_id` is stripped from the query filter; ids are passed through doc_ids
    - sort is an ordered tuple of (field, direction) pairs
    - limit is clamped to [1, max_query_limit] (0 means the maximum), skip to >= 0
    """

    def __init__(self, options: CrudOptions):
        """
        Initialize Normalizer

        Args:
            options: CRUD options (limits)
        """
        self.options = options

    def parse(self, params: Union[CrudParams, Mapping[str, Any]]) -> CrudParams:
        """
        Parse raw parameters

        Raises:
            ValidationError: Parameters do not match the expected shape
        """
        if isinstance(params, CrudParams):
            return params
        try:
            return CrudParams.model_validate(dict(params))
        except PydanticValidationError as e:
            errors = {
                ".".join(str(loc) for loc in err["loc"]) or "params": err["msg"]
                for err in e.errors()
            }
            raise ValidationError(
                message=f"Request parameters are invalid: {'; '.join(f'{k}: {v}' for k, v in errors.items())}",
                code="invalid_params",
                details={"errors": errors},
            ) from e

    def normalize(
        self,
        params: Union[CrudParams, Mapping[str, Any]],
        operation: Operation,
    ) -> CrudRequest:
        """
        Normalize parameters for an operation

        Args:
            params: Raw parameters (CrudParams or mapping with snake/camelCase keys)
            operation: Target operation

        Returns:
            CrudRequest: Canonical request

        Raises:
            ValidationError: Missing or malformed parameters
        """
        parsed = self.parse(params)
        errors = self._check_required(parsed, operation)
        if errors:
            raise ValidationError(
                message=f"Request parameters are invalid: {'; '.join(f'{k}: {v}' for k, v in errors.items())}",
                code="missing_params",
                details={"errors": errors},
            )

        doc_ids = tuple(to_object_ids(parsed.doc_ids))
        probes = tuple(coerce_filter_ids(probe) for probe in parsed.probes)

        query_filter = {k: v for k, v in parsed.filter.items() if k != ID_FIELD}

        return CrudRequest(
            collection=parsed.collection.strip(),
            items=tuple(dict(item) for item in parsed.items),
            filter=query_filter,
            probes=probes,
            projection=dict(parsed.projection),
            sort=self._normalize_sort(parsed.sort),
            doc_ids=doc_ids,
            skip=max(parsed.skip, 0),
            limit=self._clamp_limit(parsed.limit),
            parent_collections=tuple(parsed.parent_collections),
            child_collections=tuple(parsed.child_collections),
            recursive_delete=parsed.recursive_delete,
            credential=parsed.credential,
        )

    def _check_required(self, params: CrudParams, operation: Operation) -> dict[str, str]:
        errors: dict[str, str] = {}
        if not params.collection or not params.collection.strip():
            errors["collection"] = "collection name is required"

        if operation == Operation.SAVE:
            if not params.items:
                errors["items"] = "at least one item is required"
            elif len(params.items) > self.options.max_bulk_size:
                errors["items"] = f"at most {self.options.max_bulk_size} items are allowed per request"
        elif operation == Operation.LOAD:
            if not params.items:
                errors["items"] = "at least one item is required"
            elif len(params.items) > self.options.max_load_records:
                errors["items"] = f"at most {self.options.max_load_records} records can be loaded"
        elif operation == Operation.DELETE:
            # `_id` is stripped from filters, so a filter of only `_id` targets nothing
            if not params.doc_ids and not any(k != ID_FIELD for k in params.filter):
                errors["doc_ids"] = "record ids or a filter are required"
        return errors

    def _clamp_limit(self, limit: int) -> int:
        maximum = self.options.max_query_limit
        if limit == 0:
            return maximum
        return min(max(limit, 1), maximum)

    @staticmethod
    def _normalize_sort(sort: Any) -> tuple[tuple[str, int], ...]:
        pairs = sort.items() if isinstance(sort, dict) else sort
        result = []
        for field, direction in pairs:
            if direction not in (1, -1):
                raise ValidationError(
                    message=f"Invalid sort direction for {field}: {direction!r}",
                    code="invalid_sort",
                    details={"field": field},
                )
            result.append((field, int(direction)))
        return tuple(result)
