from statuspage.main import main

main()
