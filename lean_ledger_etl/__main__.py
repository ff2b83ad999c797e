import sys

from lean_ledger_etl.cli import main

sys.exit(main())
