"""grotop: Grothendieck topologies as fixed points of a Galois connection."""

from .galois import (
    GaloisEquivalence,
    Relation,
)
from .category import (
    FiniteCategory,
    Morphism,
    category_from_table,
    poset_category,
)
from .sieve import Sieve, SievePair, all_pairs, all_sieves
from .presheaf import (
    Presheaf,
    constant_presheaf,
    enumerate_presheaves,
    make_presheaf,
    presheaf_from_tables,
)
from .sheaf import (
    MatchingFamily,
    amalgamate,
    glue_through_refinement,
    is_iso_restriction_map,
    is_sheaf_for,
    matching_families,
    restriction_map,
)
from .restriction import sieve_restriction_relation
from .topology import AxiomReport, GrothendieckTopology, verify_topology
from .correspondence import (
    SubUniverseSelector,
    TopologySubtoposCorrespondence,
    canonical_topology,
    correspondence,
    selector_from_fixed_point,
    topology_from_fixed_point,
    topology_is_fixed_point,
)
from .errors import (
    AmalgamationError,
    CategoryError,
    EnumerationLimitExceeded,
    GrotopError,
    NotAFixedPoint,
    PresheafError,
    RelationError,
    SieveError,
)
from .result import Err, Ok, Result, Undecided, Verdict, Verified, Violated

__all__ = [
    # Galois
    "GaloisEquivalence", "Relation",
    # Categories and sieves
    "FiniteCategory", "Morphism", "category_from_table", "poset_category",
    "Sieve", "SievePair", "all_pairs", "all_sieves",
    # Presheaves and sheaves
    "Presheaf", "constant_presheaf", "enumerate_presheaves", "make_presheaf",
    "presheaf_from_tables", "MatchingFamily", "amalgamate", "glue_through_refinement",
    "is_iso_restriction_map", "is_sheaf_for", "matching_families", "restriction_map",
    # Correspondence
    "sieve_restriction_relation", "AxiomReport", "GrothendieckTopology", "verify_topology",
    "SubUniverseSelector", "TopologySubtoposCorrespondence", "canonical_topology", "correspondence",
    "selector_from_fixed_point", "topology_from_fixed_point", "topology_is_fixed_point",
    # Errors
    "AmalgamationError", "CategoryError", "EnumerationLimitExceeded", "GrotopError",
    "NotAFixedPoint", "PresheafError", "RelationError", "SieveError",
    # Results
    "Err", "Ok", "Result", "Undecided", "Verdict", "Verified", "Violated",
]
