from loxenv.main import main

raise SystemExit(main())
