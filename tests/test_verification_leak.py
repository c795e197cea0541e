"""Verification Test: Memory Leak Check.

The log buffer is the only structure that grows with activity, and it is
capped. Running thousands of inject/heal cycles must therefore leave the
process RSS essentially flat once the buffer is full.
"""

import gc
import random
import threading

import psutil

from healsim.engine import SimulationEngine


def get_current_memory_mb() -> float:
    """Get current process memory usage in MB."""
    return psutil.Process().memory_info().rss / (1024 * 1024)


class TestMemoryLeakCheck:
    def test_churn_memory_stability(self, settings):
        """RSS growth after warm-up stays small over thousands of cycles."""
        engine = SimulationEngine(settings, rng=random.Random(99), start_drift=False)
        engine.start()

        # Warm-up fills the log buffer to its cap
        for _ in range(200):
            engine.inject_faults()
            engine.heal_faults()
        gc.collect()
        initial_memory = get_current_memory_mb()

        for _ in range(5000):
            engine.inject_faults()
            engine.heal_faults()
            engine.get_state()

        gc.collect()
        final_memory = get_current_memory_mb()
        engine.stop()

        assert engine.store.log_count() == settings.log_capacity
        delta = final_memory - initial_memory
        assert delta < 5.0, f"Memory grew by {delta:.2f}MB over 5000 cycles"

    def test_drift_thread_does_not_accumulate(self, settings):
        """Starting and stopping engines repeatedly leaves no drift threads behind."""
        fast = settings.model_copy(update={"drift_interval": 0.1})
        baseline = threading.active_count()

        for seed in range(10):
            with SimulationEngine(fast, rng=random.Random(seed)):
                pass

        assert threading.active_count() <= baseline
