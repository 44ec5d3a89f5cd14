from forkproc.cli import main

raise SystemExit(main())
