from docgov.api_stub.runner import run_periodic_check

res = run_periodic_check()
print(res)
