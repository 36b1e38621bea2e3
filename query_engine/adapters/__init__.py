"""Storage adapters that run execution plans against concrete stores."""
