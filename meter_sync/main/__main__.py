"""Run the sync worker with ``python -m meter_sync.main``."""

from .worker import main

if __name__ == "__main__":
    main()
