"""
Candidate Filtering Module
==========================

Narrows the catalog to tracks that may be recommended:
1. Drop tracks the user has already swiped (any direction)
2. Drop explicit tracks when the user opted out of explicit content
3. Drop tracks outside the requested language

The filter is pure and keeps catalog order.
"""

import logging
from typing import Iterable, List, Optional, Set

from .models import SwipeEvent, Track

logger = logging.getLogger(__name__)


def swiped_track_ids(swipes: Optional[Iterable[SwipeEvent]]) -> Set[int]:
    """Ids of every track the user swiped, regardless of direction."""
    return {s.track_id for s in swipes or ()}


class CandidateFilter:
    """
    Excludes already-swiped, disallowed-explicit and wrong-language tracks.

    Tracks with no explicit flag are allowed. Tracks with no language are
    excluded as soon as a language is required.
    """

    def filter(
        self,
        tracks: Optional[Iterable[Track]],
        swiped_ids: Optional[Iterable[int]] = None,
        no_explicit: bool = False,
        language_id: Optional[int] = None,
    ) -> List[Track]:
        """
        Apply exclusion rules to the catalog.

        Args:
            tracks: Catalog tracks, in catalog order
            swiped_ids: Track ids already swiped by the user
            no_explicit: Exclude tracks flagged explicit
            language_id: Required language, or None for any

        Returns:
            Candidate tracks in their original order
        """
        excluded = set(swiped_ids or ())
        candidates = []

        for track in tracks or ():
            if track.id in excluded:
                continue
            if no_explicit and track.is_explicit:
                continue
            if language_id is not None and track.language_id != language_id:
                continue
            candidates.append(track)

        logger.debug(
            "Filtered candidates: %d kept (swiped=%d, no_explicit=%s, language=%s)",
            len(candidates),
            len(excluded),
            no_explicit,
            language_id,
        )
        return candidates
