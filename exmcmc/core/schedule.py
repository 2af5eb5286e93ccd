"""
Schedule of MCMC steps.

The schedule is an iterator over ``(mcmciter, pidx)`` pairs: the index of the
MCMC iteration and the index of the update (slot) that is to be performed.
Both are 1-based. Updates can be excluded from chosen ranges of iterations and
the schedule can be changed while it is being iterated over.
"""

from collections import defaultdict
from numbers import Integral
from typing import Container, Iterable, Iterator, NamedTuple, Optional, Sequence, Tuple, Union

SlotSpec = Union[int, Iterable[int]]
Exclusion = Tuple[SlotSpec, Container[int]]


class MCMCStep(NamedTuple):
    """A single step of the schedule"""

    mcmciter: int
    pidx: int
    prev_pidx: Optional[int] = None

    @property
    def iter_index(self) -> int:
        """0-based index of the iteration, for indexing history buffers"""
        return self.mcmciter - 1

    @property
    def slot_index(self) -> int:
        """0-based index of the update slot"""
        return self.pidx - 1


def _as_slots(slots: SlotSpec) -> Iterable[int]:
    if isinstance(slots, Integral):
        return (int(slots),)
    return slots


class MCMCSchedule:
    """
    Iterator over the steps of an MCMC sampler.

    ``num_mcmc_steps`` is the total number of iterations and ``num_updates`` the
    number of update slots performed in a single iteration. ``exclude_updates``
    lists pairs ``(slots, iterations)``: the slot(s) are skipped at every
    iteration contained in ``iterations`` (typically a ``range``).

    Attributes:
        exclude_updates: Map from a slot index to the iterations at which it is
            skipped. Slots without an entry are never skipped.

    Examples:
        >>> schedule = MCMCSchedule(3, 2, [(2, range(2, 3))])
        >>> [(s.mcmciter, s.pidx) for s in schedule]
        [(1, 1), (1, 2), (2, 1), (3, 1), (3, 2)]
    """

    def __init__(self, num_mcmc_steps: int, num_updates: int, exclude_updates: Sequence[Exclusion] = ()):
        if num_mcmc_steps < 0:
            raise ValueError(f"num_mcmc_steps must be >= 0, got {num_mcmc_steps}.")
        if num_updates < 1:
            raise ValueError(f"num_updates must be >= 1, got {num_updates}.")
        self.num_mcmc_steps = int(num_mcmc_steps)
        self.num_updates = int(num_updates)
        self.start = MCMCStep(mcmciter=1, pidx=1)
        self.exclude_updates = defaultdict(lambda: range(0))
        for slots, iterations in exclude_updates:
            for idx in _as_slots(slots):
                self.exclude_updates[idx] = iterations

    def __iter__(self) -> Iterator[MCMCStep]:
        step = self.start
        if self.is_excluded(step):
            step = self.transition(step)._replace(prev_pidx=None)
        while step.mcmciter <= self.num_mcmc_steps:
            # The successor is resolved before the body of the current step runs
            next_step = self.transition(step)
            yield step
            step = next_step

    def is_excluded(self, step: MCMCStep) -> bool:
        return step.mcmciter in self.exclude_updates[step.pidx]

    def transition(self, step: MCMCStep) -> MCMCStep:
        """
        Determine the next step, skipping through all updates that are to be
        excluded as per ``exclude_updates``.
        """
        new_step = step
        while True:
            pidx_to_reset = new_step.pidx >= self.num_updates
            new_step = MCMCStep(
                mcmciter=new_step.mcmciter + pidx_to_reset,
                pidx=1 if pidx_to_reset else new_step.pidx + 1,
                prev_pidx=step.pidx,
            )
            if new_step.mcmciter > self.num_mcmc_steps or not self.is_excluded(new_step):
                return new_step

    def reschedule(self, num_new_updates: int = 0, idxes_to_remove: Iterable[int] = (), idxes_to_add: Sequence[Exclusion] = ()) -> None:
        """
        Change the schedule, possibly in the midst of iterating through it.

        Args:
            num_new_updates: Number of update slots to be added to every iteration.
            idxes_to_remove: Slots that are to be removed for all iterations.
            idxes_to_add: Pairs ``(slots, iterations)`` that add or overwrite
                entries of ``exclude_updates``.
        """
        if num_new_updates < 0:
            raise ValueError(f"num_new_updates must be >= 0, got {num_new_updates}.")
        self.num_updates += int(num_new_updates)
        for idx in idxes_to_remove:
            self.exclude_updates[idx] = range(1, self.num_mcmc_steps + 1)
        for slots, iterations in idxes_to_add:
            for idx in _as_slots(slots):
                self.exclude_updates[idx] = iterations
