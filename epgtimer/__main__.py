from epgtimer.main import main

main()
