from pyagentflow.cli import main

raise SystemExit(main())
