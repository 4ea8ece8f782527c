from depgroups.cli import main

raise SystemExit(main())
