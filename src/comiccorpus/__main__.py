from comiccorpus.cli import main

raise SystemExit(main())
