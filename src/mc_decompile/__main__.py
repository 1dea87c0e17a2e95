from mc_decompile.cli import main

raise SystemExit(main())
