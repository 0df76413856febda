from app.consultancy import create_app

app = create_app()
