from foyer import Request, Response, controller, handle_path


@controller
class HomeController:

    @handle_path("/")
    async def index(self, request: Request, response: Response):
        response.set_header("x-served-by", "foyer")
        response.write(f"Welcome to the bookshop. You asked for {request.path}")
