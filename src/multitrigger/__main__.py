from multitrigger.main import main

raise SystemExit(main())
