from jtemplate.driver.cli import main

raise SystemExit(main())
