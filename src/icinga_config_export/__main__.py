from icinga_config_export.main import main

main()
