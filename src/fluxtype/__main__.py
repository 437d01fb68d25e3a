from fluxtype.cli import main

raise SystemExit(main())
