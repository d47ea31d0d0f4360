from slide2048.app import main

main()
