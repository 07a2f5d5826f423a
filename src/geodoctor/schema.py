from __future__ import annotations

from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

REPORT_SCHEMA_VERSION = 1


class GraphPolicyDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    min_largest_component_ratio: float = Field(
        alias="minLargestComponentRatio", ge=0.0, le=1.0, allow_inf_nan=False
    )
    max_isolates: int = Field(alias="maxIsolates", ge=0)
    min_mean_degree: float = Field(alias="minMeanDegree", ge=0.0, allow_inf_nan=False)


class FairnessPolicyDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    max_promoted_share_warn: float = Field(
        alias="maxPromotedShareWarn", ge=0.0, le=1.0, allow_inf_nan=False
    )
    max_promoted_share_fail: float = Field(
        alias="maxPromotedShareFail", ge=0.0, le=1.0, allow_inf_nan=False
    )
    max_promoted_cross_cluster_ratio: float = Field(
        alias="maxPromotedCrossClusterRatio", ge=0.0, le=1.0, allow_inf_nan=False
    )


class PolicyDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    graph: GraphPolicyDTO
    fairness: FairnessPolicyDTO


class DegreesDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: int = Field(ge=0)
    median: int = Field(ge=0)
    max: int = Field(ge=0)
    mean: float = Field(ge=0.0, allow_inf_nan=False)
    p90: int = Field(ge=0)
    histogram: Dict[str, int]


class ReportMetaDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    tool_version: str
    input_hashes: Dict[str, str]
    timings: Dict[str, float] = {}


class DoctorReportDTO(BaseModel):
    """Serialized output of the metrics engine; immutable once built."""

    model_config = ConfigDict(frozen=True)

    schema_version: Literal[1] = REPORT_SCHEMA_VERSION
    nodes: int = Field(ge=0)
    edges: int = Field(ge=0)
    directed_edges: int = Field(default=0, ge=0)
    clusters: int = Field(default=0, ge=0)
    components: int = Field(ge=0)
    largest_component_ratio: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)
    degrees: DegreesDTO
    cross_cluster_ratio: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)
    cross_cluster_edges: int = Field(ge=0)
    asym_pairs: List[Tuple[str, str]] = []
    self_loops: int = Field(default=0, ge=0)
    isolates: int = Field(default=0, ge=0)
    unclustered: int = Field(default=0, ge=0)
    promoted_share: float = Field(default=0.0, ge=0.0, le=1.0, allow_inf_nan=False)
    meta: Optional[ReportMetaDTO] = None


class GateDegreesDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    mean: float = Field(ge=0.0, allow_inf_nan=False)
    histogram: Dict[str, int] = {}


class GateReportDTO(BaseModel):
    """The slice of a doctor report the gate reads; other fields are ignored."""

    model_config = ConfigDict(frozen=True)

    largest_component_ratio: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)
    degrees: GateDegreesDTO
    cross_cluster_ratio: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)
    promoted_share: float = Field(default=0.0, ge=0.0, le=1.0, allow_inf_nan=False)

    @property
    def isolate_count(self) -> int:
        return int(self.degrees.histogram.get("0", 0))


class GateFindingDTO(BaseModel):
    rule: str
    severity: Literal["warn", "fail"]
    observed: float
    threshold: float
    message: str


class GateResultDTO(BaseModel):
    verdict: Literal["PASS", "WARN", "FAIL", "INVALID"]
    exit_code: int
    strict: bool = False
    promoted_share: Optional[float] = None
    findings: List[GateFindingDTO] = []
    errors: List[str] = []
