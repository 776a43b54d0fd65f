"""Named resource subsets used to index variables and constraint families."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

from .catalog import Catalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubsetIndex:
    """
    Resource name tuples, each in catalog order.

    Attributes
    ----------
    G : all working resources
    UC / ED : unit-commitment eligible / economic dispatch only
    STOR : storage
    VRE : variable renewables
    NEW / OLD : new-build candidates / existing resources (a partition of G)
    RETIRABLE : existing resources that may retire
    STOR_NEW / STOR_OLD : storage split by build eligibility
    RAMP : non-storage resources with a binding ramp limit
    POLICY : RPS or CES eligible
    """
    G: Tuple[str, ...]
    UC: Tuple[str, ...]
    ED: Tuple[str, ...]
    STOR: Tuple[str, ...]
    VRE: Tuple[str, ...]
    NEW: Tuple[str, ...]
    OLD: Tuple[str, ...]
    RETIRABLE: Tuple[str, ...]
    STOR_NEW: Tuple[str, ...]
    STOR_OLD: Tuple[str, ...]
    RAMP: Tuple[str, ...]
    POLICY: Tuple[str, ...]

    @classmethod
    def from_catalog(cls, catalog: Catalog) -> "SubsetIndex":
        res = catalog.resources

        def pick(pred):
            return tuple(r.name for r in res if pred(r))

        return cls(
            G=pick(lambda r: True),
            UC=pick(lambda r: r.commit),
            ED=pick(lambda r: not r.commit),
            STOR=pick(lambda r: r.stor),
            VRE=pick(lambda r: r.vre),
            NEW=pick(lambda r: r.is_new),
            OLD=pick(lambda r: not r.is_new),
            RETIRABLE=pick(lambda r: r.can_retire),
            STOR_NEW=pick(lambda r: r.stor and r.is_new),
            STOR_OLD=pick(lambda r: r.stor and not r.is_new),
            RAMP=pick(lambda r: not r.stor
                      and (r.ramp_up_percentage < 1.0 or r.ramp_dn_percentage < 1.0)),
            POLICY=pick(lambda r: r.rps or r.ces),
        )


def working_catalog(catalog: Catalog, exclude_hydro_and_must_run: bool = True) -> Catalog:
    """
    Drop hydro and non-dispatchable (must-run) resources from the catalog.

    These need reservoir and must-run formulations the linear model does not
    carry, so they are removed before any subset is derived.
    """
    if not exclude_hydro_and_must_run:
        return catalog
    dropped = [r.name for r in catalog.resources if r.hydro or r.ndisp]
    if dropped:
        logger.info("Excluding %d hydro/must-run resource(s): %s", len(dropped), dropped)
    return catalog.without(dropped)
