from repo_cli.cli import main

raise SystemExit(main())
