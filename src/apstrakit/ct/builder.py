"""
Connectivity template policy tree builder.

One leaf policy compiles into three wire records::

    main      the leaf itself; attributes come from its encoder
    pipeline  {"first_subpolicy": <main id>, "second_subpolicy": null, "resolver": null}
    batch     {"subpolicies": []}

The pipeline and batch siblings are each built at most once per policy
object. Building either a second time raises :class:`AlreadyBuiltError`, since
a duplicate would become an orphaned node on the server.

Usage::

    policy = CtPolicy(label="web", attributes=AttachSingleVlan(vn_node_id="vn-1"))
    main, pipeline, batch = policy.compile()
    body = {"policies": [r.to_wire() for r in (main, pipeline, batch)]}
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, Field

from apstrakit.core.exceptions import (
    AlreadyBuiltError,
    AttributeEncodingError,
    StructuralPolicyTypeError,
)
from apstrakit.core.ids import new_object_id
from apstrakit.ct.attributes import CtAttributes
from apstrakit.ct.types import BuildState, CtPolicyTypeName

logger = logging.getLogger(__name__)

PIPELINE_LABEL_SUFFIX = f" ({CtPolicyTypeName.PIPELINE.value})"
BATCH_LABEL_SUFFIX = f" ({CtPolicyTypeName.BATCH.value})"


class PipelineAttributes(BaseModel):
    first_subpolicy: str
    second_subpolicy: str | None = None
    resolver: Any = None


class BatchAttributes(BaseModel):
    subpolicies: list[str] = Field(default_factory=list)


class CtPolicyRecord(BaseModel):
    """One node of the policy graph as sent to ``obj-policy-import``."""

    id: str
    label: str
    description: str = ""
    tags: list[str] | None = None
    user_data: Any = None
    visible: bool = False
    policy_type_name: str
    attributes: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        # tags / user_data are omitted when unset; attributes keep their nulls
        wire: dict[str, Any] = {"description": self.description}
        if self.tags is not None:
            wire["tags"] = list(self.tags)
        if self.user_data is not None:
            wire["user_data"] = self.user_data
        wire.update(
            label=self.label,
            visible=self.visible,
            policy_type_name=self.policy_type_name,
            attributes=self.attributes,
            id=self.id,
        )
        return wire


class CtPolicy:
    """
    A leaf connectivity template policy plus its two lazily built siblings.

    ``policy_type_name`` is the declared type. It only decides whether the
    pipeline / batch siblings may be built; the main record's wire type always
    comes from ``attributes.policy_type_name()``. When omitted it defaults to
    the encoder's type.
    """

    def __init__(
        self,
        label: str,
        attributes: CtAttributes,
        *,
        policy_type_name: CtPolicyTypeName | None = None,
        description: str = "",
        tags: list[str] | None = None,
        user_data: Any = None,
        visible: bool = False,
        policy_id: str | None = None,
        id_factory: Callable[[], str] = new_object_id,
    ) -> None:
        self.label = label
        self.attributes = attributes
        self.policy_type_name = (
            policy_type_name if policy_type_name is not None else attributes.policy_type_name()
        )
        self.description = description
        self.tags = tags
        self.user_data = user_data
        self.visible = visible
        self.id = policy_id
        self._id_factory = id_factory

        self.pipeline_state = BuildState.UNBUILT
        self.batch_state = BuildState.UNBUILT
        self.pipeline: CtPolicyRecord | None = None
        self.batch: CtPolicyRecord | None = None

    def __repr__(self) -> str:
        return (
            f"CtPolicy(label={self.label!r}, type={self.policy_type_name.value!r}, "
            f"id={self.id!r}, pipeline={self.pipeline_state.value}, batch={self.batch_state.value})"
        )

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _check_wrappable(self, what: str) -> None:
        if self.policy_type_name.structural:
            raise StructuralPolicyTypeError(
                f"cannot build {what} for policy {self.label!r} "
                f"of type {self.policy_type_name.value!r}"
            )

    def _check_unbuilt(self, what: str, state: BuildState) -> None:
        if state is BuildState.BUILT:
            raise AlreadyBuiltError(f"{what} for policy {self.label!r} has already been built")

    def _marshal_attributes(self) -> dict[str, Any]:
        raw = self.attributes.raw()
        try:
            # round trip so the record holds plain JSON types only
            return json.loads(json.dumps(raw))
        except (TypeError, ValueError) as exc:
            raise AttributeEncodingError(
                f"failed marshaling {self.attributes.policy_type_name().value} attributes: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def _mint_main_id(self) -> str:
        return self.id if self.id is not None else self._id_factory()

    def _pipeline_record(self, main_id: str, pipeline_id: str) -> CtPolicyRecord:
        return CtPolicyRecord(
            id=pipeline_id,
            label=self.label + PIPELINE_LABEL_SUFFIX,
            description=self.description,
            tags=[],
            policy_type_name=CtPolicyTypeName.PIPELINE.value,
            attributes=PipelineAttributes(first_subpolicy=main_id).model_dump(),
        )

    def _batch_record(self, batch_id: str) -> CtPolicyRecord:
        return CtPolicyRecord(
            id=batch_id,
            label=self.label + BATCH_LABEL_SUFFIX,
            description=self.description,
            tags=list(self.tags) if self.tags is not None else [],
            policy_type_name=CtPolicyTypeName.BATCH.value,
            attributes=BatchAttributes().model_dump(),
        )

    def build_pipeline(self) -> CtPolicyRecord:
        """
        Build the pipeline wrapper whose first subpolicy is this policy.

        Raises:
            StructuralPolicyTypeError: declared type is none / pipeline / batch.
            AlreadyBuiltError:         called a second time.
            IdentityError:             id minting failed.
        """
        self._check_wrappable("pipeline")
        self._check_unbuilt("pipeline", self.pipeline_state)

        main_id = self._mint_main_id()
        pipeline_id = self._id_factory()

        self.id = main_id
        self.pipeline = self._pipeline_record(main_id, pipeline_id)
        self.pipeline_state = BuildState.BUILT
        return self.pipeline

    def build_batch(self) -> CtPolicyRecord:
        """
        Build the (initially empty) batch that hangs under the pipeline.

        Raises:
            StructuralPolicyTypeError: declared type is none / pipeline / batch.
            AlreadyBuiltError:         called a second time.
            IdentityError:             id minting failed.
        """
        self._check_wrappable("batch")
        self._check_unbuilt("batch", self.batch_state)

        self.batch = self._batch_record(self._id_factory())
        self.batch_state = BuildState.BUILT
        return self.batch

    def compile(self) -> list[CtPolicyRecord]:
        """
        Return ``[main, pipeline, batch]``. Valid once per object.

        Guards, marshaling and all three id mints run before any field is
        assigned, so a failed compile leaves the object as it was and may be
        retried.

        Raises:
            StructuralPolicyTypeError, AlreadyBuiltError, AttributeEncodingError,
            IdentityError
        """
        self._check_wrappable("pipeline")
        self._check_unbuilt("pipeline", self.pipeline_state)
        self._check_unbuilt("batch", self.batch_state)

        attributes = self._marshal_attributes()
        main_id = self._mint_main_id()
        pipeline_id = self._id_factory()
        batch_id = self._id_factory()

        main = CtPolicyRecord(
            id=main_id,
            label=self.label,
            description=self.description,
            tags=self.tags,
            user_data=self.user_data,
            visible=self.visible,
            policy_type_name=self.attributes.policy_type_name().value,
            attributes=attributes,
        )
        pipeline = self._pipeline_record(main_id, pipeline_id)
        batch = self._batch_record(batch_id)

        self.id = main_id
        self.pipeline, self.pipeline_state = pipeline, BuildState.BUILT
        self.batch, self.batch_state = batch, BuildState.BUILT

        logger.debug(
            "compiled policy %r: main=%s pipeline=%s batch=%s",
            self.label,
            main.id,
            pipeline.id,
            batch.id,
        )
        return [main, pipeline, batch]
