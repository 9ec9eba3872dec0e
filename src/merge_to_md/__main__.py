from merge_to_md.cli import main

raise SystemExit(main())
